"""
Thin load/query layer over pandas.

Reads CSV tables, filters by date, selects columns and extracts numeric columns
for the analytics core, translating pandas failures into DatasetError.
"""
