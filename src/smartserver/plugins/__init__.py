"""Plugin package initialiser (source of truth).

Rebuild rules:
- Keep this file lightweight; do not import concrete plugins here so imports of
  ``smartserver.plugins`` remain side-effect free.
- Concrete plugin modules (``logging``) self-register on the process-wide
  registry when imported (see ``smartserver.__init__`` for eager imports).
"""

__all__: list[str] = []
