'''Building blocks shared by several tabulators.'''
