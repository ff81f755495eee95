"""dsvload: config parsing, schema compiling and line tokenizing for DSV bulk loads."""

__version__ = "0.1.0"
