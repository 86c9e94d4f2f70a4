"""CLI subcommands for reqcheck."""
