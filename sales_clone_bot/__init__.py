"""Sales Clone Bot: Slack mention bot for sales-call coaching.

WHY: Sales teams share call recordings in Slack threads and want
feedback, transcripts, summaries, or clipped highlights without leaving
the thread. This package turns an @-mention into a background job that
does the work and posts the result back to the same thread.

HOW: Three layers. Receive (FastAPI + slack-bolt webhook that parses the
mention and launches a job), core (command parsing, time-range
extraction, media segmentation), and strategies (one per action, each
composing the Slack, Gemini, Deepgram, and ffmpeg collaborators).

RULES:
- The webhook never does heavy work inline; it launches a job and returns
- Every action runs through the same locate → download → run → cleanup flow
- Unknown actions fall back to default feedback
"""

__version__ = "0.1.0"
