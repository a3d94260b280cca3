"""gem2arch command-line interface."""
