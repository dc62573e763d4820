"""
Analysis package for the CPU Scheduling & Deadlock Simulator.
Contains the event log, timeline recorder and run statistics.
"""
