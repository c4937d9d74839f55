"""rehook - webhook receiver with pluggable, transactional components."""
__version__ = "0.1.1"
