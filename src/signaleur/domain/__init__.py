"""
Domain layer for Signaleur.
"""
