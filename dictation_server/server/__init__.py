"""HTTP and WebSocket API.

WHY: The browser needs accounts, saved dictations, a phrase dictionary,
recognizer settings, and a live session socket.

HOW: app.py defines the FastAPI app, models.py the request/response
schemas, store.py the in-memory records, auth.py password and token
helpers.

RULES:
- Endpoints convert store records to response models; records never
  reach a client directly
"""
