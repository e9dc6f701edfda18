"""
The image build graph: build units, their dependencies on each other and when they need to be rebuilt.
"""
