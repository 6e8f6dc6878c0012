# Importing the package registers every table on Base.metadata
from conduit.models.user import Follow, User
from conduit.models.article import Article, ArticleTag, Favorite
from conduit.models.comment import Comment

__all__ = ["User", "Follow", "Article", "ArticleTag", "Favorite", "Comment"]
