"""
linecounter: per-file line counts computed as a map/combine/reduce job.
"""

__version__ = "1.0.0"
