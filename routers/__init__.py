from routers import comments, dashboard, likes, playlists, subscriptions, users, videos

all_routers = [
    users.router,
    videos.router,
    comments.router,
    likes.router,
    playlists.router,
    subscriptions.router,
    dashboard.router,
]
