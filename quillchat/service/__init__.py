"""Service layer: relay application, chat session, CLI and dev server.

Submodules are imported explicitly (``quillchat.service.app``,
``quillchat.service.chat_session``) so the CLI does not load FastAPI unless
``serve`` is requested.
"""
