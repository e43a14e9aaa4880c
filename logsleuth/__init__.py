"""
logsleuth - AI-assisted Kubernetes pod log analysis.

A command-line tool that sends pod logs to an OpenAI-compatible chat
completion service, renders the analysis in the terminal and derives
ready-to-run Loki queries from the log text.
"""

__version__ = "0.1.0"
__author__ = "logsleuth Contributors"
