# main.py
# Role: Application entry point for the finance tracker API.
#       Builds the FastAPI app from the environment configuration.
#       Run with:  uvicorn main:app --port 5000

"""
Main FastAPI app for the personal finance tracker.

Everything is wired in app/application.py:create_app; here we only
create the module-level `app` for the ASGI server.
"""

from app.application import create_app

app = create_app()
