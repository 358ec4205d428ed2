"""Compare AWS Lambda packaging strategies for Node.js projects."""

__version__ = "0.1.0"
