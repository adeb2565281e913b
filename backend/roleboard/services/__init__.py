"""Domain services. Every function takes the :class:`~roleboard.storage.Storage` first."""
