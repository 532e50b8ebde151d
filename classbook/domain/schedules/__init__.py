"""Weekly class templates"""
