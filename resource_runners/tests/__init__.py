"""
Tests for resource runners.

This package contains tests for:
- Policy network and genetic operators
- Sensor encoding and ray casting
- Agent decisions and fitness
- Selection strategies and population lifecycle
- Arena, kinematic world and simulation loop
- Visualization and command line entry point
"""
