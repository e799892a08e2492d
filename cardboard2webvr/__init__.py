"""Cardboard Camera photos to a WebVR photo site.

Extraction of the embedded right eye, 2:1 canvas and preview images,
and the radial carousel layout used by the generated page.
"""
