"""
Chat Vibes Analyzer frontend package.

Streamlit dashboard that submits transcripts to the backend and renders the
analysis lifecycle, split into data access (core), presentation (ui) and
Streamlit session helpers (utils).
"""
