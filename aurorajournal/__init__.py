# -*- coding: utf-8 -*-
"""Aurora Journal package.

Modules:
    errors:    Error taxonomy shared by the store, engine and UI.
    models:    Record and its tagged lock state.
    crypto:    Password hashing and the obscure/reveal keystream codecs.
    db:        Blob storage (aiosqlite key/value table + in-memory fake).
    store:     Collection Store (CRUD over the persisted collection).
    lock:      Lock Engine (lock / unlock / rotate, password-gated).
    session:   In-memory cache of entries unlocked this session.
    logic:     Config + the Journal facade used by the UI.
    ui:        Textual-based UI (screens, modals, app).
    theme.css: Textual CSS themes (loaded by ui.py).
"""

__all__ = ["errors", "models", "crypto", "db", "store", "lock", "session", "logic", "ui"]
