"""
soiltemp: stepping harness for point-in-time soil temperature models.
"""
__version__ = "0.1.0"
