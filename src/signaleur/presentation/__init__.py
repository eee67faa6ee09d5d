"""
Presentation layer for Signaleur.
"""
