"""
Exceptions raised by imagetask. User exceptions signal a misconfigured build graph, system exceptions signal a
failure of one of the external collaborators (the image store or the build command).
"""
