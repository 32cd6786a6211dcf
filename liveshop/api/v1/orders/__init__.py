"""Order endpoints"""
