"""
Infrastructure layer for Signaleur.
"""
