"""
StackAtlas - a moderated catalog of startup technology stacks.
"""
