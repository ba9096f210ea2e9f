"""AI pull request reviewer.

Reviews each hunk of a pull request diff with a language model and posts the
findings as inline review comments.
"""

__version__ = "0.1.0"
