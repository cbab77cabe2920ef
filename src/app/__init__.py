"""
App layer: HTTP server (FastAPI).

Role:
- JSON routes for the interview client
- LLM and speech-to-text providers, request-level services
- Pure scoring, facial and timer logic lives in src/core
"""
