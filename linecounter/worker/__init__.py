"""Map and reduce task executors"""
