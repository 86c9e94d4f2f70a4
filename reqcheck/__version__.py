"""Version of the reqcheck package, shown by ``reqcheck --version``."""

__version__ = "0.1.0.dev0"
