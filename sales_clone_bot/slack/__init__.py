"""Slack event handling for the sales clone bot.

WHY: Slack delivers app_mention events over HTTP and expects an answer
within 3 seconds. This package parses the mention, acknowledges it in
the thread, and hands the real work to a background job.

HOW: bot.py builds a slack-bolt App with the app_mention handler;
messages.py holds every user-facing text.

RULES:
- Handlers never download or process media inline
- Every accepted mention gets an in-thread acknowledgement
"""
