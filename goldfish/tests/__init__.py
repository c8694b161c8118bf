"""Goldfish test suite"""
