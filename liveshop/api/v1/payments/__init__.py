"""Payment endpoints"""
