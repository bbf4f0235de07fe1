"""Questionnaire codec.

Encodes a section/topic/question tree into flat positional rows and
decodes flat rows back into the tree. Pure: no database access.
"""
