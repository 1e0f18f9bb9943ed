"""Rendering of the outgoing XML: request documents, filters and GML geometries."""
