"""Core parsing and media modules.

WHY: The decisions that do not depend on any network service live here
(what the user asked for, which time ranges they meant, how to cut the
media) so they can be tested in isolation.

HOW: command_parser.py maps mention text to an action, time_ranges.py
holds the TimeRange model and timestamp arithmetic, time_extraction.py
asks Gemini for ranges and validates the answer, media_segmenter.py cuts
segments with ffmpeg, media_files.py picks the thread's target file and
owns the per-job workspace.

RULES:
- No Slack calls from this package
- Extraction failures become empty results, never exceptions
"""
