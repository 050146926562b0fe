"""
HTTP surface for the S3 actions.

Routes translate requests into core actions and errors into responses.
"""
