"""
Word-frequency counting with MapReduce.

The word count job lives in ``mrwordcount.jobs.wordcount``; the
``coordinator`` and ``worker`` packages provide a local engine that
splits input, shuffles intermediate pairs and writes the final counts.
"""

__version__ = "0.1.0"
