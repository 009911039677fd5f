"""Developer tooling for integration packages: CI checks, CODEOWNERS, coverage and beats conversion."""

__version__ = "0.1.0"