"""Reference catalogs bundled with the graph package."""
