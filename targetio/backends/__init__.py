"""Backends behind the facades: local (os/shutil/pwd) and remote (session)."""
