"""menudigital: digital restaurant menus with live change notifications."""

__version__ = "0.1.0"
