"""
Algorithms package for the CPU Scheduling & Deadlock Simulator.
Contains resource allocation, scheduling, execution, deadlock detection and recovery.
"""
