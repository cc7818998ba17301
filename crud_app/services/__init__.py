"""Record store and catalog operations"""
