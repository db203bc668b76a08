"""Command line interface for modelmeta."""
