"""GitHub-facing pieces of the bootstrap: the remote client and the steps that use it."""

__all__: list[str] = []
