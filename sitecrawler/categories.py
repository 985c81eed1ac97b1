"""
Built-in category tables
Target site taxonomy (term id, name, parent id) and the keyword dictionary
used by the local classifier. Parent id 0 marks a root category.
"""

ALL_CATEGORIES = [
    # Roots
    (5209, "福利网站传送门 (Porn sites portal)", 0),
    (127, "精品资源传送门 (Boutique resources portal)", 0),
    (97, "热门影视传送门 (Popular movies portal)", 0),
    (197, "热门直播传送门 (Popular live streaming portal)", 0),
    (98, "常用推荐 (Commonly recommended)", 0),
    (144, "Telegram传送门 (Telegram portal)", 0),

    # 5209
    (5213, "亚洲视频网站 (Asian video sites)", 5209),
    (5214, "日本视频网站 (Japanese video sites)", 5209),
    (5215, "欧美视频网站 (European/American video sites)", 5209),
    (5217, "在线直播网站 (Live streaming sites)", 5209),
    (5218, "18+漫画网站 (18+ comics sites)", 5209),
    (5219, "18+动漫网站 (18+ anime sites)", 5209),
    (5220, "18+论坛网站 (18+ forum sites)", 5209),
    (5221, "18+游戏网站 (18+ game sites)", 5209),
    (5222, "三级伦理片 (Category III films)", 5209),
    (5223, "素人视频网站 (Amateur video sites)", 5209),
    (5224, "AI系列网站 (AI series sites)", 5209),
    (5225, "18+图片网站 (18+ picture sites)", 5209),
    (5226, "18+小说网站 (18+ novel sites)", 5209),
    (5228, "女同性恋网站 (Lesbian sites)", 5209),
    (5229, "男同性恋网站 (Gay sites)", 5209),
    (5230, "阿拉伯视频网站 (Arab video sites)", 5209),
    (5231, "黑人视频网站 (Ebony video sites)", 5209),
    (5232, "另类重口味网站 (Alternative/kinky sites)", 5209),
    (5233, "印度视频网站 (Indian video sites)", 5209),
    (5234, "拉丁视频网站 (Latino video sites)", 5209),
    (5235, "片商官网 (Producer official sites)", 5209),
    (5236, "人妖网站 (Shemale sites)", 5209),
    (5237, "VR虚拟现实网站 (VR sites)", 5209),

    # 127
    (1260, "行业资源 (Industry resources)", 127),
    (1262, "海外资源 (Overseas resources)", 127),
    (1263, "其他资源 (Other resources)", 127),

    # 197
    (956, "海外 (Overseas)", 197),
    (957, "游戏 (Game)", 197),
    (958, "体育 (Sports)", 197),
    (988, "真人 (Real person)", 197),

    # 144
    (172, "国际新闻 (International News)", 144),
    (173, "简中新闻 (Simplified Chinese News)", 144),
    (210, "港澳台新闻 (Hong Kong/Macau/Taiwan News)", 144),
    (211, "吃瓜娱乐 (Gossip/Entertainment)", 144),
    (212, "影视频道 (Movie/TV Channel)", 144),
    (213, "音乐频道 (Music Channel)", 144),
]

# Parent-only categories carry no keywords and are reached through their children
CATEGORY_KEYWORDS = {
    5209: [],
    127: [],
    97: [],
    197: [],
    98: [],
    144: [],

    5213: ["亚洲", "asia", "asian", "国产", "chinese", "local"],
    5214: ["日本", "japan", "japanese", "jp", "jav", "av"],
    5215: ["欧美", "europe", "america", "western", "usa", "eu"],
    5217: ["直播", "live", "cam", "stream", "chat"],
    5218: ["漫画", "hentai", "manga", "comic", "manhwa"],
    5219: ["动漫", "anime", "animation"],
    5220: ["论坛", "forum", "bbs", "community"],
    5221: ["游戏", "game", "gaming", "h-game"],
    5222: ["三级", "伦理", "category iii", "classic"],
    5223: ["素人", "amateur", "homemade"],
    5224: ["ai", "换脸", "deepfake", "artificial intelligence"],
    5225: ["图片", "tupian", "photo", "image", "gallery"],
    5226: ["小说", "xiaoshuo", "novel", "story", "erotica"],
    5228: ["女同", "lesbian", "yuri", "les"],
    5229: ["男同", "gay", "bl", "yaoi"],
    5230: ["阿拉伯", "arab", "middle east"],
    5231: ["黑人", "ebony", "black", "interracial"],
    5232: ["另类", "重口", "alternative", "kinky", "fetish", "bdsm"],
    5233: ["印度", "india", "indian", "desi"],
    5234: ["拉丁", "latina", "latino", "hispanic"],
    5235: ["片商", "studio", "producer"],
    5236: ["人妖", "shemale", "trans", "ladyboy", "tranny"],
    5237: ["vr", "virtual reality"],

    1260: ["行业", "industry", "professional"],
    1262: ["海外", "overseas", "international", "foreign"],
    1263: ["其他", "other", "misc", "uncategorized"],

    # 97 has no children yet
    956: ["海外", "overseas", "international", "foreign"],
    957: ["游戏", "game", "gaming", "esports"],
    958: ["体育", "sports", "football", "soccer", "nba"],
    988: ["真人", "real person", "influencer"],

    172: ["国际新闻", "international news"],
    173: ["简中新闻", "simplified chinese news"],
    210: ["港澳台新闻", "hkmotw news"],
    211: ["吃瓜", "gossip", "scandal"],
    212: ["影视", "movie", "film", "tv show"],
    213: ["音乐", "music"],
}
