"""Shared records, configuration and report formatting"""
