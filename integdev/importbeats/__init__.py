"""Helpers for converting beats modules into integration packages."""