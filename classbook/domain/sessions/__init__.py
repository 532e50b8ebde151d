"""Dated class sessions and the session generator"""
