"""Stippler - Render images and videos as fields of dispersed icon stipples.

Stippler extracts a brightness silhouette from each frame, finds the edges of
that silhouette, and scatters small icon glyphs (cursors, circles, triangles,
stars) over it, pushing the glyphs nearest the edges furthest outward.

Example:
    $ stippler render portrait.png

This will create portrait-stippled.png next to the input image.
"""

__version__ = "0.1.0"
__author__ = "Stippler Contributors"

__all__ = ["__author__", "__version__"]
