import graphene


class ExtendedConnection(graphene.relay.Connection):
    '''
    Relay connection which also reports the total number of nodes
    '''
    class Meta:
        abstract = True

    total_count = graphene.Int()

    def resolve_total_count(root, info, **kwargs):
        return root.length
