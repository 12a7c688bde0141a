"""
SoulFrame Atlas backend: build lab calculator, wiki catalog reads and data file admin.
"""
