"""Class type catalog"""
