"""
Models package for the CPU Scheduling & Deadlock Simulator.
Contains the process, resource and system state data model.
"""
