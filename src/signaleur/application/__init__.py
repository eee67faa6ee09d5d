"""
Application layer for Signaleur.
"""
