class BoardError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidRequestError(BoardError):
    status_code = 400
    error = "Bad Request"


class NotFoundError(BoardError):
    status_code = 404
    error = "Not Found"


class PostNotFoundError(NotFoundError):
    def __init__(self, post_id):
        super().__init__(f"Post not found. id: {post_id}")
        self.post_id = post_id


class CommentNotFoundError(NotFoundError):
    def __init__(self, comment_id):
        super().__init__(f"Comment not found. id: {comment_id}")
        self.comment_id = comment_id


class LikeNotFoundError(NotFoundError):
    def __init__(self, post_id, user_id):
        super().__init__(f"Like not found. postId: {post_id}, userId: {user_id}")
        self.post_id = post_id
        self.user_id = user_id


class ConflictError(BoardError):
    status_code = 409
    error = "Conflict"


class DuplicateLikeError(ConflictError):
    def __init__(self, post_id, user_id):
        super().__init__(f"User {user_id} already liked post {post_id}")
        self.post_id = post_id
        self.user_id = user_id
