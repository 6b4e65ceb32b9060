"""
Presentation layer exposing the upload service over HTTP.
"""
