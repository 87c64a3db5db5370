"""bookgraph: GraphQL catalogue of books, authors and users"""

__version__ = "0.1.0"
