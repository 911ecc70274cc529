"""
Gemini Proxy Application
========================

Forwards generateContent requests to the Google Gemini API with a
server-held API key and relays the upstream response unchanged.

Entry points:
    - gemini_proxy.app.main:app        FastAPI application (uvicorn)
    - gemini_proxy.app.serverless:handler  Netlify / Lambda style function
"""
