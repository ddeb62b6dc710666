"""ASGI request pipeline: scope in, router dispatch, ASGI messages out."""
