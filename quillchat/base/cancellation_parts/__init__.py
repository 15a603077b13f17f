"""Cancellation implementation modules (use ``quillchat.base.cancellation``)."""
