"""Utility helpers for promote-tool"""
