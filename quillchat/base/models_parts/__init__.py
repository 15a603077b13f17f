"""One-class-per-file domain models (use ``quillchat.base.models``)."""
