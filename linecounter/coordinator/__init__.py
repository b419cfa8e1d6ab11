"""Job lifecycle, shuffle and metrics"""
