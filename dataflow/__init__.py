"""
DataFlow - copy tables between databases from a JSON job description.
"""

__version__ = "0.1.0"
