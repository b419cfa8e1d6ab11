"""Job definitions (map, combiner and reduce functions)"""
