"""Command line entry point"""
