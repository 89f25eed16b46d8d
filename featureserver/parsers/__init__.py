"""Parsing of the incoming request parameters.

The query-string parameters are converted into Python types here,
so the rest of the code only deals with validated values.
"""
