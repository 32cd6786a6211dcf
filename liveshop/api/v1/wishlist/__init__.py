"""Wishlist endpoints"""
