"""Vehicle repair assistant: chat with an AI technician grounded in PDF repair manuals."""

__version__ = "0.1.0"
