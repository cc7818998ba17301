"""Authentication layer: password hashing and session management"""
