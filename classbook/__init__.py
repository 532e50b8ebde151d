"""Group fitness class scheduling and booking service"""
